"""Business services for the SchoolHub API."""
