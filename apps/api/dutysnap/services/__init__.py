"""
Business services for DutySnap API
"""
