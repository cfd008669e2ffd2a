"""Token lifecycle: issuance, verification, revocation."""
