"""Remote task store clients and the local/remote sync coordinator."""
