"""Insurance brokerage CRM API."""
