"""FabNStitch order tracking backend."""
