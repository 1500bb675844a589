"""
lmstudio-oss - LM Studio readiness checks

Quick Start:
    pip install -e .
    python -m lmstudio_oss ensure
"""

from lmstudio_oss.cli.cli import main

if __name__ == "__main__":
    main()
