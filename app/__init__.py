"""Budget planning and freelance invoicing backend."""
