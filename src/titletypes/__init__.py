"""titletypes - a browsable taxonomy of topics, subtypes and example links."""
