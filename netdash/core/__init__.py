"""netdash core: configuration and logging setup."""
