"""
Build dashboard panel structs from the analytics proxy (tone, grammar, conversations).
Route by panel id and delegate to panel-specific adapters.
"""

from panels.base import BasePanelAdapter
from panels.router import build_panel, register_adapter, registered_panels

# Register built-in adapters so build_panel(panel_id, filters) works for known panels
from panels.adapters.conversations import (
    ConversationAnalyticsAdapter,
    ConversationListAdapter,
    ConversationThreadAdapter,
)
from panels.adapters.grammar import (
    ErrorFrequencyAdapter,
    ErrorFrequencyByAgentAdapter,
    ErrorTrendsAdapter,
    GrammarAccuracyAdapter,
)
from panels.adapters.tone import (
    AgentToneAdapter,
    MultiCustomerToneAdapter,
    ToneAlertsAdapter,
    ToneAnalysisAdapter,
    ToneShiftAdapter,
    ToneTableAdapter,
)

for _adapter in (
    ToneShiftAdapter(),
    ToneTableAdapter(),
    AgentToneAdapter(),
    ToneAnalysisAdapter(is_positive=True),
    ToneAnalysisAdapter(is_positive=False),
    MultiCustomerToneAdapter(),
    ToneAlertsAdapter(),
    ErrorFrequencyAdapter(),
    GrammarAccuracyAdapter(),
    ErrorFrequencyByAgentAdapter(),
    ErrorTrendsAdapter(),
    ConversationListAdapter(),
    ConversationThreadAdapter(),
    ConversationAnalyticsAdapter(),
):
    register_adapter(_adapter)

__all__ = [
    "BasePanelAdapter",
    "build_panel",
    "register_adapter",
    "registered_panels",
]
