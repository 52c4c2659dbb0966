"""
DutySnap API package
"""
