"""Resource layers and composition of the Zana AWS deployment."""
