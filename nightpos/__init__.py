"""Night venue point-of-sale core: pricing, ticket numbering and bookkeeping."""
