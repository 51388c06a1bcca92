"""CustoZero access service: payment webhooks and diagnostic access tokens."""
