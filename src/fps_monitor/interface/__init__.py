"""
Interface Layer

외부 입력(설정 파일, 스트림 목록, 명령줄)을 런타임 구조로 변환합니다.
"""
