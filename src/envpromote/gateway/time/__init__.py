"""Clock and sleep abstraction.

Import from submodules:
- abc: Time
- real: RealTime
- fake: FakeTime
"""
