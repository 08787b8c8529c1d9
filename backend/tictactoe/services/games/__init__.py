"""Game domain services: board rules, rooms, the room directory and the
persistence gateway.

This package contains the game mechanics imported by HTTP routes and socket
handlers, keeping transport concerns separated from the state machine.
"""
