from alchemist.rules.parser import RULE_PATTERNS, parse_rule
from alchemist.rules.session import RuleSession

__all__ = ["RULE_PATTERNS", "RuleSession", "parse_rule"]
