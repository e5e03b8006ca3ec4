"""Skill scoring and advice.

Provides:
- Composite 0-100 scores with trend detection and failure patterns
- Pre-call warnings with alternative skills
- Markdown performance reports and improvement suggestions
"""

from skillmeter.analysis.advisor import SkillAdvisor, Suggestion
from skillmeter.analysis.scorer import SkillScore, SkillScorer, Trend

__all__ = [
    "SkillAdvisor",
    "SkillScore",
    "SkillScorer",
    "Suggestion",
    "Trend",
]
