class AddonReconcilerError(Exception):
    # Set by the reconciler to the name of the stage the error was raised in
    stage: str | None = None


class SecretGenerationError(AddonReconcilerError):
    pass


class MissingSecretError(AddonReconcilerError):
    def __init__(self, secret_name: str, message: str | None = None) -> None:
        self.secret_name = secret_name
        super().__init__(message or f"Secret '{secret_name}' is missing")


class ConfigCompositionError(AddonReconcilerError):
    pass


class UnsupportedProviderError(ConfigCompositionError):
    pass


class ImageResolutionError(AddonReconcilerError):
    def __init__(self, image_name: str, runtime_version: str, message: str | None = None) -> None:
        self.image_name = image_name
        self.runtime_version = runtime_version
        super().__init__(
            message or f"No image found for '{image_name}' compatible with runtime version {runtime_version}"
        )


class TemplateNotFoundError(AddonReconcilerError):
    pass


class TemplateRenderError(AddonReconcilerError):
    pass


class ApplyError(AddonReconcilerError):
    def __init__(self, message: str, kind: str | None = None, namespace: str | None = None,
                 name: str | None = None, status: int | None = None) -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.status = status
        super().__init__(message)


class ResourceNotFoundError(ApplyError):
    pass
