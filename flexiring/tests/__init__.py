"""
Tests Module: Unit Tests

Test Coverage:
    - Hash strategies (CRC32/MD5 golden values, int32 reinterpretation)
    - Consistent hash ring (add/remove/lookup, wraparound, fallback order)
    - Synchronized ring under concurrent threads
    - Distribution and disruption analysis
    - Configuration, errors, logging, metrics, CLI
"""
