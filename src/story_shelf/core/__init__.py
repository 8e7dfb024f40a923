"""Story domain rules: query predicates, validation, and orchestration."""
