"""Services communs : configuration, journalisation, erreurs et notifications."""
