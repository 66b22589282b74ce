"""
QuietPlay Test Suite
"""
