"""Core game logic — 순수 전이 함수와 불변 상태 모델"""
