"""
ClinicDesk API Module
"""
