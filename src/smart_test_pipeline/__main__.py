"""Entry point for the smart_test_pipeline package."""

import sys
from smart_test_pipeline.cli import main

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(130)
