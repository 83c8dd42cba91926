"""VocabDeck review backend: SM-2 scheduling per practice direction."""
