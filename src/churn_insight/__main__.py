"""Allow ``python -m churn_insight``."""

from .cli import main

main()
