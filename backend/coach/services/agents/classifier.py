"""Query classifier: maps a query and session type to the analyzers to run."""

import logging
from typing import List, Optional

from ...schemas.agents.context import EXECUTION_ORDER, SessionType
from .keywords import ClassifierTables, contains_any

logger = logging.getLogger(__name__)


class QueryClassifier:
    """Keyword classifier over the seven analyzer domains.

    Matching is inclusive: every keyword set that hits adds its analyzer.
    The result is never empty and always comes back in execution order.
    """

    def __init__(self, tables: Optional[ClassifierTables] = None):
        self.tables = tables or ClassifierTables()

    def select_analyzers(self, query: str, session_type: str) -> List[str]:
        """Select the analyzers required for a query.

        Args:
            query: User's free-text question
            session_type: diagnostic | strategic | implementation

        Returns:
            Duplicate-free list of analyzer ids in canonical order
        """
        if session_type == SessionType.STRATEGIC:
            selected = set(self.tables.strategic_analyzers)
            logger.debug(f"[Classifier] Strategic session, selecting all {len(selected)} analyzers")
            return self._ordered(selected)

        query_lower = query.lower()
        selected = set()

        if not contains_any(query_lower, self.tables.opt_out_phrases):
            selected.add(self.tables.always_include)

        for analyzer, keywords in self.tables.keyword_sets.items():
            if contains_any(query_lower, keywords):
                selected.add(analyzer)

        if not selected:
            selected.add(self.tables.default_analyzer)

        ordered = self._ordered(selected)
        logger.debug(f"[Classifier] Selected {ordered} (tables v{self.tables.version})")
        return ordered

    @staticmethod
    def _ordered(selected) -> List[str]:
        order = [a.value for a in EXECUTION_ORDER]
        known = [a for a in order if a in selected]
        # Ids outside the canonical order keep a stable position at the end
        return known + sorted(a for a in selected if a not in order)
