import sys

from src.learner_groups.cli import main


if __name__ == "__main__":
    sys.exit(main())
