from .security_event import SecurityEvent
from .query import QueryDescriptor, QueryFilters, TimeRange, INTENT_INVESTIGATE, INTENT_REPORT
from .query_result import ChartSeries, QueryResult, QueryStats
from .conversation_turn import ConversationTurn
