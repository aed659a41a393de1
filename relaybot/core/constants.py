"""
relaybot constants

Shared constants used across the codebase.
"""

# Few-shot seed for every new conversation: one system message plus one
# example exchange.
PREAMBLE = (
    ("system", "you are a very helpful assistant"),
    ("user", "How can I plan my career development?"),
    (
        "assistant",
        "Planning your career development can be an important step towards achieving "
        "your professional goals. Here are some steps you can take to plan your career "
        "development:\n"
        "1. Assess your current skills and strengths: Before you start planning your "
        "career development, it's important to have a good understanding of your current "
        "skills and strengths. This can help you identify areas where you need to improve "
        "and areas where you excel.\n"
        "2. Identify your career goals: Think about what you want to achieve in your "
        "career. This can include short-term and long-term goals, such as learning a new "
        "skill, getting a promotion, or starting your own business.\n"
        "3. Research career paths: Once you have identified your career goals, research "
        "different career paths that can help you achieve those goals. Look for job "
        "descriptions, career websites, and other resources to learn more about the "
        "skills and experience needed for different roles.",
    ),
)

# Preamble length plus one full exchange
MIN_MAX_LENGTH = len(PREAMBLE) + 2

DEFAULT_MAX_LENGTH = 33

DEFAULT_IMAGE_KEYWORDS = ["生成图片", "generate image"]

# Answers from the model classifier that mean "this is an image request"
IMAGE_INTENT_ANSWERS = frozenset({"yes", "是"})

# Default timeout for backend requests (seconds)
DEFAULT_HTTP_TIMEOUT = 60.0
