"""Scheduling core services: sessions, eligibility, assignments, swaps, rota."""
