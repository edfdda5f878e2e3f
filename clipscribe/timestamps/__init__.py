"""Timeline data models shared by chunking, transcription and caching."""
