"""CLI subcommands for peerkeeper."""
