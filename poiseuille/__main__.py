"""
Entry point: evaluate the reference pressure-drop case and print it.

    python -m poiseuille

Set POISEUILLE_LOG_LEVEL=INFO to see the full report on stderr.
"""

import logging
import os
import sys

from .config_validation import EvaluationConfig
from .pressure_drop import evaluate_pressure_drop
from .reporting import format_pressure_drop_line, generate_text_report

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=os.environ.get('POISEUILLE_LOG_LEVEL', 'WARNING').upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    result = evaluate_pressure_drop(EvaluationConfig())
    logger.info("\n" + generate_text_report(result))

    print(format_pressure_drop_line(result.value))
    return 0


if __name__ == '__main__':
    sys.exit(main())
