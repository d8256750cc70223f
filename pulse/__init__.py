"""
Pulse Widget Platform
소셜 멘션 속도 기반 금융 위젯 플랫폼
"""

__version__ = "1.0.0"
