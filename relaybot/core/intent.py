"""Intent classification - decides whether a message asks for an image."""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from relaybot.core.constants import DEFAULT_IMAGE_KEYWORDS, IMAGE_INTENT_ANSWERS
from relaybot.core.errors import ClassificationAmbiguous, ConfigurationError
from relaybot.core.session import Message, Role

logger = logging.getLogger(__name__)


class IntentClassifier(ABC):
    """Classifies incoming text as an image request or conversation."""

    name = "base"

    @abstractmethod
    async def is_image_request(self, text: str) -> bool:
        """Return True when the message asks for an image."""
        pass


class KeywordClassifier(IntentClassifier):
    """Substring match against a set of trigger phrases."""

    name = "keyword"

    def __init__(self, keywords: Iterable[str] = DEFAULT_IMAGE_KEYWORDS):
        self.keywords: List[str] = [k for k in keywords if k]

    async def is_image_request(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


class ModelClassifier(IntentClassifier):
    """Asks the backend for a yes/no verdict.

    Only an exact "yes" (or "是") after trimming counts as an image request;
    any other answer is treated as conversation. Backend errors propagate.
    """

    name = "model"

    SYSTEM_PROMPT = (
        "You decide whether a chat message asks you to draw, generate or create an image. "
        "Answer with exactly one word: yes or no. Do not explain."
    )

    EXAMPLES = (
        ("generate image of a red fox in the snow", "yes"),
        ("what is the capital of France?", "no"),
        ("帮我生成图片：海边的日落", "yes"),
        ("tell me a joke about cats", "no"),
    )

    def __init__(self, llm_client):
        self.llm_client = llm_client

    def build_prompt(self, text: str) -> List[Message]:
        messages = [Message(role=Role.SYSTEM, content=self.SYSTEM_PROMPT)]
        for question, answer in self.EXAMPLES:
            messages.append(Message(role=Role.USER, content=question))
            messages.append(Message(role=Role.ASSISTANT, content=answer))
        messages.append(Message(role=Role.USER, content=text))
        return messages

    async def is_image_request(self, text: str) -> bool:
        answer = await self.llm_client.complete(self.build_prompt(text))
        try:
            return self._interpret(answer)
        except ClassificationAmbiguous as e:
            logger.info(f"Ambiguous intent answer, treating as conversation: {e}")
            return False

    @staticmethod
    def _interpret(answer: str) -> bool:
        verdict = (answer or "").strip()
        if verdict in IMAGE_INTENT_ANSWERS:
            return True
        if verdict in ("no", "否"):
            return False
        raise ClassificationAmbiguous(repr(verdict[:50]))


def build_classifier(strategy: str, keywords: Iterable[str] = DEFAULT_IMAGE_KEYWORDS, llm_client=None) -> IntentClassifier:
    """Create the classifier selected by configuration.

    Raises:
        ConfigurationError: Unknown strategy or missing backend for the model strategy
    """
    if strategy == KeywordClassifier.name:
        return KeywordClassifier(keywords)
    if strategy == ModelClassifier.name:
        if llm_client is None:
            raise ConfigurationError("Model intent strategy needs an LLM client")
        return ModelClassifier(llm_client)
    raise ConfigurationError(f"Unknown intent strategy: {strategy}")
