from tssync.classes import Key, Status


class TranslationCatalogError(Exception):
    pass


class ConfigurationError(TranslationCatalogError):
    pass


class DuplicateIdentityError(TranslationCatalogError):
    def __init__(self, key: Key, existing: Key | None = None):
        self.key = key
        self.existing = existing or key
        context, source, disambiguation = key
        message = f'Duplicate entry "{source}" in context "{context}"'
        if disambiguation:
            message += f' ({disambiguation})'
        if self.existing != key:
            message += f' collides with "{self.existing[1]}"'
        super().__init__(message)


class InvalidTransitionError(TranslationCatalogError):
    def __init__(self, key: Key, current: Status, target: Status):
        self.key = key
        self.current = current
        self.target = target
        super().__init__(
            f'Cannot move "{key[1]}" in context "{key[0]}" from {current.value} to {target.value}'
        )
