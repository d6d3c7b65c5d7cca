"""Everything a quiz room needs to run a round, minus the transport.

- ``session``: per-room round state machine
- ``registry``: room key to live session, plus the idle reaper
- ``ledger``: UTC-day score per identity
- ``questions``: bank loading and the unused-question draw
- ``scoring``: remaining time to points
- ``scheduler``: round deadlines and periodic upkeep
- ``gateway``: fan-out to a room on the Socket.IO namespace
"""
