from defense.units.base import GrowthRule, ProjectileMode, TowerStats, TowerType


class Archer(TowerType):
    """Cheap long-range shooter; grows in damage and range."""
    type_id = "archer"
    display_name = "Archer"
    icon = "🏹"
    cost = 50
    mode = ProjectileMode.BALLISTIC
    base = TowerStats(damage=10, range=150, fire_interval=1000, projectile_speed=0.3)
    growth = GrowthRule(damage=0.2, range=0.15)


class MachineGun(TowerType):
    """Short range, high rate of fire; grows mostly in fire rate."""
    type_id = "machinegun"
    display_name = "Machine Gun"
    icon = "🔫"
    cost = 100
    mode = ProjectileMode.BALLISTIC
    base = TowerStats(damage=5, range=100, fire_interval=300, projectile_speed=0.5)
    growth = GrowthRule(damage=0.15, fire_rate=0.25)


class Bomb(TowerType):
    """Slow homing shells with splash damage."""
    type_id = "bomb"
    display_name = "Bomb"
    icon = "💣"
    cost = 150
    mode = ProjectileMode.HOMING
    base = TowerStats(damage=30, range=140, fire_interval=2000, projectile_speed=0.2,
                      area_radius=50)
    growth = GrowthRule(damage=0.3, area=0.1)


class Laser(TowerType):
    """Instant-hit beam; damage lands the moment it fires."""
    type_id = "laser"
    display_name = "Laser"
    icon = "⚡"
    cost = 200
    mode = ProjectileMode.INSTANT
    base = TowerStats(damage=50, range=200, fire_interval=1500, projectile_speed=0.8)
    growth = GrowthRule(damage=0.25, range=0.1, fire_rate=0.15)
