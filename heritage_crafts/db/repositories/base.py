from typing import Any, Generic, Iterable, Optional, Sequence, Type, TypeVar

from sqlmodel import SQLModel, Session, select, func

from heritage_crafts.db.models.base import utcnow

# Type générique pour le modèle (User, Course, Order, etc.)
ModelT = TypeVar("ModelT", bound=SQLModel)


class BaseRepository(Generic[ModelT]):
    """
    Repository de base partagé par toutes les tables de la plateforme.

    👉 Ne contient aucune logique métier.
    👉 Les repositories concrets définissent `model = MaClasseSQLModel`
       et ajoutent leurs filtres (catégorie, artisan, statut...).
    👉 Toutes les écritures acceptent commit=False : le service regroupe alors
       plusieurs écritures (commande + stock + coupon) dans une seule transaction.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def _persist(self, entity: Optional[ModelT], commit: bool) -> None:
        if commit:
            self.session.commit()
            if entity is not None:
                self.session.refresh(entity)
        else:
            # flush : l'ID est disponible pour les FKs avant le commit du service
            self.session.flush()

    # ---------- READ ----------

    def get(self, id_: Any) -> Optional[ModelT]:
        return self.session.get(self.model, id_)

    def list_by_ids(self, ids: Iterable[int]) -> Sequence[ModelT]:
        """Chargement groupé (panier, recommandations) ; l'ordre n'est pas garanti."""
        ids = list(ids)
        if not ids:
            return []
        return self.session.exec(select(self.model).where(self.model.id.in_(ids))).all()

    def count(self) -> int:
        return self.session.exec(select(func.count(self.model.id))).one()

    def recent(self, limit: int = 10) -> Sequence[ModelT]:
        """Dernières lignes créées (tableau de bord admin)."""
        stmt = select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc()).limit(limit)
        return self.session.exec(stmt).all()

    # ---------- WRITE ----------

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        entity = self.model(**fields)
        self.session.add(entity)
        self._persist(entity, commit)
        return entity

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        """updated_at est rafraîchi automatiquement sauf s'il fait partie des changements."""
        for key, value in changes.items():
            setattr(entity, key, value)
        if hasattr(entity, "updated_at") and "updated_at" not in changes:
            entity.updated_at = utcnow()
        self.session.add(entity)
        self._persist(entity, commit)
        return entity

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        self._persist(None, commit)
