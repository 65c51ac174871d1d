"""netdash query layer: statement building, response schemas and parsing."""
