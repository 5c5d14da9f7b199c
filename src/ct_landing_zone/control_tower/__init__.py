"""Control Tower landing zone manifest and assembly."""
