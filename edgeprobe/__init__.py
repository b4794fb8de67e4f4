"""Edgeprobe: rotating-egress probe engine with browser escalation."""
