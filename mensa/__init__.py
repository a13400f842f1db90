"""
Mensa 食堂订餐后端服务
"""

__version__ = "1.0.0"
