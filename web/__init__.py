"""HTTP layer for the BizBud site platform"""
