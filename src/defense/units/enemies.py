from defense.units.base import EnemyStats, EnemyType


class Ant(EnemyType):
    type_id = "ant"
    display_name = "Ant"
    icon = "🐜"
    stats = EnemyStats(health=20, speed=0.000075, bounty=3)


class Caterpillar(EnemyType):
    type_id = "caterpillar"
    display_name = "Caterpillar"
    icon = "🐛"
    stats = EnemyStats(health=50, speed=0.000045, bounty=6)


class Scorpion(EnemyType):
    """Armoured mid-tier walker; only appears from wave 3 onward."""
    type_id = "scorpion"
    display_name = "Scorpion"
    icon = "🦂"
    stats = EnemyStats(health=80, speed=0.00006, bounty=10)


class Dragon(EnemyType):
    """Boss kind injected at milestone waves."""
    type_id = "dragon"
    display_name = "Dragon"
    icon = "🐉"
    stats = EnemyStats(health=250, speed=0.000036, bounty=30)
