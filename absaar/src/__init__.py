"""
Absaar cloud polling daemon.

Logs into the Absaar / mini-ems inverter cloud, walks the selected power
station, its collectors and their inverter readings, and republishes the
values into a key-value state store every two minutes.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""
