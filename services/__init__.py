"""Project lifecycle engine: state machine, communication thread and access rules."""
