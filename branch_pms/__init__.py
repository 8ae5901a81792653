"""
Branch PMS - 多分店酒店管理后端
"""
__version__ = "1.0.0"
