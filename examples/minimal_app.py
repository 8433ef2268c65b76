import logging
import os

from parseable_client import setup_logging  # type: ignore[import]


def main() -> None:
  # Minimal configuration via environment variables
  os.environ.setdefault("PARSEABLE_HOST", "http://localhost")
  os.environ.setdefault("PARSEABLE_STREAM", "example-app")
  os.environ.setdefault("PARSEABLE_USERNAME", "admin")
  os.environ.setdefault("PARSEABLE_PASSWORD", "admin")

  logger = logging.getLogger("example_app")
  logging.basicConfig(level=logging.INFO)
  logger.setLevel(logging.INFO)

  setup_logging(logger, level="info")

  logger.info("Example INFO log from minimal app", extra={"context": {"user_id": 42}})
  try:
    1 / 0
  except ZeroDivisionError:
    logger.exception("Example ERROR log with exception")


if __name__ == "__main__":
  main()
