"""
DutySnap API: HS code classification comparison and duty aggregation
"""
