"""Translation support for the application."""

# Current language
_current_language = "en"

# Translation dictionaries
_translations = {
    "de": {
        # Group labels
        "Group {number}": "Gruppe {number}",

        # Engine issues
        "{name} could not be assigned to any group because of conflicting rules.":
            "{name} konnte wegen widersprüchlicher Regeln keiner Gruppe zugewiesen werden.",
        "{name} had to be added to an existing group despite a conflict.":
            "{name} musste trotz Konflikt zu einer bestehenden Gruppe hinzugefügt werden.",
        "{name} should not work together with {peer}.":
            "{name} sollte nicht mit {peer} zusammenarbeiten.",
        "{name} was not grouped with {peer}.":
            "{name} wurde nicht mit {peer} gruppiert.",
        "Unknown error while building groups.": "Unbekannter Fehler beim Bilden der Gruppen.",
        "Unknown grouping mode: {mode}": "Unbekannter Gruppierungsmodus: {mode}",

        # Roster import
        "Invalid class file: {details}": "Ungültige Klassendatei: {details}",
        "Unsupported file type: {suffix}": "Nicht unterstützter Dateityp: {suffix}",
        "Some relationships could not be resolved: {refs}":
            "Einige Beziehungen konnten nicht zugeordnet werden: {refs}",

        # Class store
        "Class not found: {class_id}": "Klasse nicht gefunden: {class_id}",
        "Invalid class id: {class_id}": "Ungültige Klassen-ID: {class_id}",

        # Command line
        "Unassigned": "Nicht zugewiesen",
        "Issues": "Hinweise",
        "Warning": "Warnung",
        "Conflict": "Konflikt",
        "No learners in roster.": "Keine Lernenden in der Liste.",
        "Exported to:": "Exportiert nach:",
        "Import failed:": "Import fehlgeschlagen:",
        "Export failed:": "Export fehlgeschlagen:",
    }
}


def set_language(lang: str):
    """Set the current language."""
    global _current_language
    _current_language = lang


def get_language() -> str:
    """Get the current language."""
    return _current_language


def tr(text: str) -> str:
    """Translate a string to the current language."""
    if _current_language == "en":
        return text

    translations = _translations.get(_current_language, {})
    return translations.get(text, text)


def available_languages() -> list[tuple[str, str]]:
    """Get list of available languages as (code, name) tuples."""
    return [
        ("en", "English"),
        ("de", "Deutsch"),
    ]
