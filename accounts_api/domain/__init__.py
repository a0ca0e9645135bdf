"""Pure domain rules (validation, response shaping) with no I/O."""
