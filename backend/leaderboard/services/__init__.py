"""Leaderboard domain services: scores, rooms, bonuses and rankings.

This package contains the domain logic imported by the HTTP routes,
keeping transport concerns separated from the store rules. Every mutating
operation is a single transaction whose commit point is a conditional
write, so concurrent handlers never need in-process coordination.
"""
