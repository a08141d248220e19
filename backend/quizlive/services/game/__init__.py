"""Quiz session domain: scoring, transitions, the answer ledger and timers.

Routes, the stage timer and the polling clients all call into these
modules; nothing here knows about HTTP or Socket.IO except the scheduler's
broadcast hint.
"""
