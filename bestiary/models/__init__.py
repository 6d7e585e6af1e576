from bestiary.models.actions import Action, ActionPattern
from bestiary.models.creatures import Creature, CreatureType, CreatureTypeSpell, CreatureTypeWeapon
from bestiary.models.models import Armor, Spell, User, Weapon

__all__ = [
    "Action",
    "ActionPattern",
    "Armor",
    "Creature",
    "CreatureType",
    "CreatureTypeSpell",
    "CreatureTypeWeapon",
    "Spell",
    "User",
    "Weapon",
]
