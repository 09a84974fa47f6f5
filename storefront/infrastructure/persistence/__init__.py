"""SQL persistence: binding, execution, row mapping and filter compilation."""
