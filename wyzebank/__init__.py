"""Wyze Bank dashboard backend: session gate and realtime activity feed."""
