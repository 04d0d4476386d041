"""CareerZone notification and credit ledger service."""
