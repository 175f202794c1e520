"""
Sleeper live draft tracker: scarcity analysis, draft plans and panic-mode recommendations.
"""
