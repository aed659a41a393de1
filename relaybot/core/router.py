"""
Message router

Top-level per-message logic: filter, classify, dispatch to the image or
conversation path, and reply.
"""

import logging

from relaybot.core.dialogue import DialogueManager
from relaybot.core.errors import RelayBotError
from relaybot.core.images import ImageSink
from relaybot.core.intent import IntentClassifier, build_classifier
from relaybot.core.llm_client import ImageSize, LLMClient
from relaybot.core.session import SessionStore
from relaybot.interfaces.base import IncomingMessage

logger = logging.getLogger(__name__)


class Router:
    """Routes incoming chat messages to the generation backend."""

    def __init__(
        self,
        store: SessionStore,
        dialogue: DialogueManager,
        classifier: IntentClassifier,
        llm_client: LLMClient,
        image_sink: ImageSink,
        image_size: ImageSize = ImageSize.SMALL,
    ):
        self.store = store
        self.dialogue = dialogue
        self.classifier = classifier
        self.llm_client = llm_client
        self.image_sink = image_sink
        self.image_size = image_size

    @staticmethod
    def is_eligible(message: IncomingMessage) -> bool:
        """Group messages must mention the bot; direct ones must come from a contact."""
        if message.from_group:
            if not message.mentioned:
                return False
        elif not message.from_known_contact:
            return False

        if message.from_self:
            return False

        return message.is_text

    async def handle_incoming(self, message: IncomingMessage):
        """Process one incoming message. Never raises."""
        if not self.is_eligible(message):
            return

        logger.info(f"Message from {message.sender_id}: {message.content[:50]}")

        try:
            if await self._is_image_request(message.content):
                await self._reply_image(message)
            else:
                await self._reply_text(message)
        except RelayBotError as e:
            logger.error(f"Dropped message from {message.sender_id}: {e}")
        except Exception as e:
            logger.error(f"Error processing message from {message.sender_id}: {e}", exc_info=True)

    async def _is_image_request(self, text: str) -> bool:
        try:
            return await self.classifier.is_image_request(text)
        except Exception as e:
            logger.warning(f"Intent classification failed, handling as conversation: {e}")
            return False

    async def _reply_image(self, message: IncomingMessage):
        data = await self.llm_client.generate_image(message.content, self.image_size)
        path = await self.image_sink.save(data)
        await message.reply_image(path)
        logger.info(f"✓ Image sent to {message.sender_id}: {path}")

    async def _reply_text(self, message: IncomingMessage):
        user_id = message.sender_id

        # One turn at a time per user; the session is committed only after
        # the reply went out.
        async with self.store.lock(user_id):
            session = self.store.get_or_create(user_id)
            session, context = self.dialogue.append_user_turn(session, message.content)

            result = await self.llm_client.complete(context)
            await message.reply_text(result)

            session = self.dialogue.append_assistant_turn(session, result)
            self.store.replace(user_id, session)

        logger.info(f"✓ Reply sent to {user_id}: {result[:100]}")


def create_router(config) -> Router:
    """Wire a Router from a loaded Config.

    Raises:
        ConfigurationError: If the configuration cannot produce a working router
    """
    llm_client = LLMClient(
        base_url=config.llm.base_url,
        model_name=config.llm.model_name,
        api_key=config.llm.api_key,
        timeout=config.llm.timeout_seconds,
    )

    return Router(
        store=SessionStore(),
        dialogue=DialogueManager(config.dialogue.max_length),
        classifier=build_classifier(
            config.intent.strategy,
            keywords=config.intent.keywords,
            llm_client=llm_client,
        ),
        llm_client=llm_client,
        image_sink=ImageSink(config.images.directory),
        image_size=config.images.size,
    )
