"""
Erreurs métier de la publication / rétractation.

Les services les lèvent, les routers les traduisent en HTTPException.
"""


class VideoPipelineError(Exception):
    pass


class DistributionError(VideoPipelineError):
    """Seed / unseed refusé ou agent de diffusion injoignable."""


class ThumbnailError(VideoPipelineError):
    """Impossible de produire la miniature."""


class PersistenceError(VideoPipelineError):
    """Insertion ou suppression en base impossible."""


class NotFoundError(VideoPipelineError, LookupError):
    pass


class NotOwnedError(VideoPipelineError):
    """La vidéo n'appartient pas à ce nœud ou à l'utilisateur."""


class FederationError(VideoPipelineError):
    """Annonce aux pairs non émise. Jamais fatale."""


class PublishCancelledError(VideoPipelineError):
    """Publication interrompue par l'appelant ; les étapes faites sont annulées."""
