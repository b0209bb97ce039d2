"""Conversation state for the coaching conductor.

Two layers:
- SessionManager keeps short-lived per-session message history (TTL based).
- AgentMemorySystem learns per-user patterns across turns: which agents and
  frameworks worked, recurring topics, past insights.
"""

import logging
import time
import uuid
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional

from ...schemas.agents.memory import (
    Adaptations,
    AgentScore,
    BusinessMemory,
    ContextualRecommendations,
    ConversationContext,
    ConversationTurn,
    FrameworkScore,
    MemoryAnalytics,
    UserFeedback,
)
from .keywords import TopicTables, contains_any

logger = logging.getLogger(__name__)


# ============================================
# Sessions
# ============================================

class ConversationSession:
    """Stores conversation state for multi-turn interactions."""

    MAX_MESSAGES = 10

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.messages: List[Dict[str, Any]] = []  # Last N messages
        self.last_analyzers: List[str] = []
        self.last_accessed: float = time.time()

    def add_message(self, role: str, content: str, analyzers: Optional[List[str]] = None) -> None:
        """Add a message to the conversation history.

        Args:
            role: "user" or "assistant"
            content: Message content
            analyzers: Analyzer ids that produced an assistant message
        """
        self.messages.append({
            "role": role,
            "content": content,
            "timestamp": time.time(),
            "analyzers": analyzers,
        })
        if analyzers:
            self.last_analyzers = list(analyzers)
        if len(self.messages) > self.MAX_MESSAGES:
            self.messages = self.messages[-self.MAX_MESSAGES:]
        self.last_accessed = time.time()


class SessionManager:
    """Manages conversation sessions with TTL and cleanup."""

    TTL_SECONDS = 30 * 60  # 30 minutes
    MAX_SESSIONS = 1000

    def __init__(self):
        self._sessions: Dict[str, ConversationSession] = {}

    def get_or_create_session(self, session_id: Optional[str] = None) -> ConversationSession:
        """Get existing session or create a new one.

        Args:
            session_id: Optional existing session ID

        Returns:
            ConversationSession instance
        """
        self._maybe_cleanup()

        if session_id and session_id in self._sessions:
            session = self._sessions[session_id]
            session.last_accessed = time.time()
            return session

        new_id = session_id or str(uuid.uuid4())
        session = ConversationSession(new_id)
        self._sessions[new_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[ConversationSession]:
        """Get a session by ID without creating."""
        session = self._sessions.get(session_id)
        if session:
            session.last_accessed = time.time()
        return session

    def _maybe_cleanup(self) -> None:
        """Remove expired sessions."""
        now = time.time()
        expired = [
            sid for sid, session in self._sessions.items()
            if now - session.last_accessed > self.TTL_SECONDS
        ]
        for sid in expired:
            del self._sessions[sid]

        # If still at the limit, drop the least recently used to make room
        if len(self._sessions) >= self.MAX_SESSIONS:
            sorted_sessions = sorted(
                self._sessions.items(),
                key=lambda x: x[1].last_accessed
            )
            for sid, _ in sorted_sessions[:len(self._sessions) - self.MAX_SESSIONS + 1]:
                del self._sessions[sid]

    def session_count(self) -> int:
        """Get the number of active sessions."""
        return len(self._sessions)


# Global session manager instance
_session_manager = SessionManager()


def get_session_manager() -> SessionManager:
    """Get the global session manager."""
    return _session_manager


# ============================================
# Long-term agent memory
# ============================================

class LearningPatterns:
    def __init__(self):
        self.preferred_agents: Dict[str, float] = {}
        self.effective_frameworks: Dict[str, float] = {}
        self.successful_query_types: List[str] = []
        self.common_misunderstandings: List[str] = []


class ContextualMemory:
    def __init__(self, window: int):
        self.recent_topics: List[str] = []
        self.ongoing_projects: List[str] = []
        self.past_recommendations: List[str] = []
        # Topic sets of the last `window` turns, used to spot ongoing projects
        self.topic_window: Deque[List[str]] = deque(maxlen=window)


class Personalization:
    """Everything remembered about one user (or anonymous session)."""

    def __init__(self, session_id: str, user_id: Optional[str], topic_window: int):
        self.session_id = session_id
        self.user_id = user_id
        self.history: List[ConversationTurn] = []
        self.business = BusinessMemory()
        self.learning = LearningPatterns()
        self.context = ContextualMemory(topic_window)
        self.adaptations = Adaptations()


def _bump(scores: Dict[str, float], key: str, success: bool) -> None:
    current = scores.get(key, 0)
    scores[key] = current + 1 if success else max(0, current - 0.5)


def _top(scores: Dict[str, float], n: int) -> List[tuple]:
    return sorted(scores.items(), key=lambda item: item[1], reverse=True)[:n]


class AgentMemorySystem:
    """Per-user learning memory plus process-wide success patterns.

    Memory is keyed by user id when one is given, otherwise by session id.
    Nothing here is persisted.
    """

    MAX_TURNS = 50
    MAX_RECENT_TOPICS = 10
    MAX_PAST_RECOMMENDATIONS = 20
    PROJECT_WINDOW = 10
    PROJECT_THRESHOLD = 3

    def __init__(self, tables: Optional[TopicTables] = None):
        self.tables = tables or TopicTables()
        self._memory: Dict[str, Personalization] = {}
        self.global_patterns: Dict[str, float] = {
            "constraint-analysis-success": 0.89,
            "offer-optimization-success": 0.85,
            "financial-modeling-success": 0.91,
            "collaboration-effectiveness": 0.83,
        }
        self.framework_effectiveness: Dict[str, Dict[str, int]] = {}

    @staticmethod
    def _key(session_id: str, user_id: Optional[str] = None) -> str:
        return user_id or session_id

    def get_personalization(self, session_id: str, user_id: Optional[str] = None) -> Personalization:
        key = self._key(session_id, user_id)
        if key not in self._memory:
            self._memory[key] = Personalization(session_id, user_id, self.PROJECT_WINDOW)
        return self._memory[key]

    def extract_topics(self, query: str) -> List[str]:
        query_lower = query.lower()
        return [
            topic for topic, keywords in self.tables.topic_patterns.items()
            if contains_any(query_lower, keywords)
        ]

    def add_conversation_turn(self, session_id: str, turn: ConversationTurn, user_id: Optional[str] = None) -> None:
        """Remember a turn and update every learned pattern from it."""
        memory = self.get_personalization(session_id, user_id)

        memory.history.append(turn)
        if len(memory.history) > self.MAX_TURNS:
            memory.history = memory.history[-self.MAX_TURNS:]

        self._update_learning_patterns(memory, turn)
        self._update_contextual_memory(memory, turn)
        self._update_business_memory(memory, turn)
        self._update_global_patterns(turn)

    def _update_learning_patterns(self, memory: Personalization, turn: ConversationTurn) -> None:
        learning = memory.learning
        analysis = turn.query_analysis

        _bump(learning.preferred_agents, turn.selected_agent, turn.success)
        for framework in analysis.frameworks:
            _bump(learning.effective_frameworks, framework, turn.success)

        if turn.success and analysis.intent:
            query_type = f"{analysis.intent}-{analysis.complexity}"
            if query_type not in learning.successful_query_types:
                learning.successful_query_types.append(query_type)

        if not turn.success or turn.user_feedback == UserFeedback.NEGATIVE:
            misunderstanding = f"{analysis.intent} - {turn.selected_agent}"
            if misunderstanding not in learning.common_misunderstandings:
                learning.common_misunderstandings.append(misunderstanding)

    def _update_contextual_memory(self, memory: Personalization, turn: ConversationTurn) -> None:
        context = memory.context
        topics = self.extract_topics(turn.user_query)

        for topic in topics:
            if topic not in context.recent_topics:
                context.recent_topics.insert(0, topic)
        context.recent_topics = context.recent_topics[:self.MAX_RECENT_TOPICS]

        context.topic_window.append(topics)
        counts = Counter(topic for turn_topics in context.topic_window for topic in set(turn_topics))
        for topic, count in counts.items():
            if count >= self.PROJECT_THRESHOLD and topic not in context.ongoing_projects:
                context.ongoing_projects.append(topic)
                logger.debug(f"[Memory] '{topic}' is now an ongoing project for {memory.user_id or memory.session_id}")

        if turn.insights:
            context.past_recommendations.extend(turn.insights)
            context.past_recommendations = context.past_recommendations[-self.MAX_PAST_RECOMMENDATIONS:]

    @staticmethod
    def _update_business_memory(memory: Personalization, turn: ConversationTurn) -> None:
        business = memory.business
        for clue in turn.query_analysis.business_context:
            if clue not in business.previous_analyses:
                business.previous_analyses.append(clue)

        if turn.success:
            for framework in turn.query_analysis.frameworks:
                if framework not in business.preferred_frameworks:
                    business.preferred_frameworks.append(framework)

    def _update_global_patterns(self, turn: ConversationTurn) -> None:
        key = f"{turn.selected_agent}-success"
        current = self.global_patterns.get(key, 0.5)
        self.global_patterns[key] = current * 0.95 + 0.05 if turn.success else current * 0.98

        for framework in turn.query_analysis.frameworks:
            stats = self.framework_effectiveness.setdefault(framework, {"success": 0, "total": 0})
            stats["total"] += 1
            if turn.success:
                stats["success"] += 1

    # ============================================
    # Reads
    # ============================================

    def get_contextual_recommendations(
        self,
        session_id: str,
        query: str,
        user_id: Optional[str] = None,
    ) -> ContextualRecommendations:
        memory = self.get_personalization(session_id, user_id)
        query_topics = [topic.lower() for topic in self.extract_topics(query)]

        def mentions_topic(text: str) -> bool:
            text = text.lower()
            return any(topic in text for topic in query_topics)

        related = [
            topic for topic in memory.context.recent_topics
            if any(q in topic.lower() or topic.lower() in q for q in query_topics)
        ]

        return ContextualRecommendations(
            agent_suggestions=[agent for agent, _ in _top(memory.learning.preferred_agents, 3)],
            framework_recommendations=[fw for fw, _ in _top(memory.learning.effective_frameworks, 3)],
            related_topics=related[:5],
            previous_insights=[i for i in memory.context.past_recommendations if mentions_topic(i)][:3],
            warning_flags=[m for m in memory.learning.common_misunderstandings if mentions_topic(m)][:2],
        )

    def get_conversation_context(self, session_id: str, user_id: Optional[str] = None) -> ConversationContext:
        memory = self.get_personalization(session_id, user_id)
        recent = memory.history[-10:]

        if not recent:
            return ConversationContext(
                recent_queries=[],
                dominant_intent="unknown",
                average_complexity="medium",
                business_focus=[],
                communication_pattern="balanced",
            )

        intents = Counter(turn.query_analysis.intent for turn in recent)
        complexities = Counter(turn.query_analysis.complexity for turn in recent)
        focus = list(dict.fromkeys(
            clue for turn in recent for clue in turn.query_analysis.business_context
        ))

        return ConversationContext(
            recent_queries=[turn.user_query for turn in recent][-5:],
            # most_common keeps first-seen order on ties
            dominant_intent=intents.most_common(1)[0][0],
            average_complexity=complexities.most_common(1)[0][0],
            business_focus=focus[:3],
            communication_pattern=memory.adaptations.response_style,
        )

    def update_user_feedback(
        self,
        session_id: str,
        turn_id: str,
        feedback: str,
        user_id: Optional[str] = None,
    ) -> bool:
        """Attach feedback to a remembered turn.

        Returns:
            False if no turn with that id is remembered
        """
        memory = self.get_personalization(session_id, user_id)
        turn = next((t for t in memory.history if t.id == turn_id), None)
        if turn is None:
            logger.warning(f"[Memory] Feedback for unknown turn {turn_id}")
            return False

        turn.user_feedback = UserFeedback(feedback)
        scores = memory.learning.preferred_agents
        current = scores.get(turn.selected_agent, 0)
        if turn.user_feedback == UserFeedback.NEGATIVE:
            scores[turn.selected_agent] = max(0, current - 1)
        elif turn.user_feedback == UserFeedback.POSITIVE:
            scores[turn.selected_agent] = current + 1
        return True

    def get_memory_analytics(self, session_id: str, user_id: Optional[str] = None) -> MemoryAnalytics:
        memory = self.get_personalization(session_id, user_id)
        history = memory.history
        count = max(1, len(history))

        return MemoryAnalytics(
            total_conversations=len(history),
            success_rate=sum(1 for t in history if t.success) / count,
            average_execution_time=sum(t.execution_time for t in history) / count,
            top_agents=[AgentScore(agent=a, score=s) for a, s in _top(memory.learning.preferred_agents, 3)],
            top_frameworks=[
                FrameworkScore(framework=f, score=s) for f, s in _top(memory.learning.effective_frameworks, 5)
            ],
            recent_topics=memory.context.recent_topics[:5],
            ongoing_projects=list(memory.context.ongoing_projects),
            business_context=memory.business.model_copy(deep=True),
            adaptations=memory.adaptations.model_copy(),
        )

    def clear_memory(self, session_id: str, user_id: Optional[str] = None) -> bool:
        """Forget everything about a user. Returns False if nothing was remembered."""
        return self._memory.pop(self._key(session_id, user_id), None) is not None


# Global memory instance
_memory_system: Optional[AgentMemorySystem] = None


def get_memory_system() -> AgentMemorySystem:
    """Get or create the global agent memory."""
    global _memory_system
    if _memory_system is None:
        _memory_system = AgentMemorySystem()
    return _memory_system
