"""
Shared constants for comparison services
"""

# Score bonus for agreeing with the reference provider
EXACT_MATCH_BONUS = 3.0
FAMILY_MATCH_BONUS = 2.0

# Winner label when the top positive scores are equal
TIE = "tie"

# Summary thresholds (defaults, overridable through settings)
SIGNIFICANT_DUTY_DIFFERENCE = 50.0
CONFIDENCE_GAP_THRESHOLD = 0.2
