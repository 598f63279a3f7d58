"""Smart test pipeline: from repository files to a pull request of generated tests."""

__version__ = "0.1.0"
