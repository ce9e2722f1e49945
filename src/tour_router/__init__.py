"""Tour route optimization and gap-filling engine."""
