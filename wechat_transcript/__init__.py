"""WeChat chat history transcript extractor."""

__version__ = "1.0.0"
