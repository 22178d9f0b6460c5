"""
Core utilities — exception taxonomy and address helpers shared by the
classifier, the store, the oracle state machine and the chain clients.
"""
