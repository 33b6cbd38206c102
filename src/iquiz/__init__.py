"""iquiz: browse quiz topics from a remote source and take them."""
