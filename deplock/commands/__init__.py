"""Click subcommands for deplock."""
