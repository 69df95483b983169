from dotenv import load_dotenv

# Load environment variables from .env file before settings classes are evaluated
load_dotenv()

from config.base import Config, TestingConfig  # noqa: E402

__all__ = ["Config", "TestingConfig"]
