"""Remote-publishing integrations."""
