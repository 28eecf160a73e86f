"""add games and descriptive stroke columns

Points recorded before games existed keep a NULL game_id and empty
rally_types.
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_games_and_stroke_details"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "game",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("match_id", sa.String(), sa.ForeignKey("match.id"), nullable=False),
        sa.Column("game_number", sa.Integer(), nullable=False),
        sa.Column(
            "player_served_first",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_game_match_id", "game", ["match_id"])

    with op.batch_alter_table("point") as batch:
        batch.add_column(sa.Column("game_id", sa.String(), nullable=True))
        batch.add_column(sa.Column("serve_type", sa.String(), nullable=True))
        batch.add_column(sa.Column("receive_type", sa.String(), nullable=True))
        batch.add_column(
            sa.Column("rally_types", sa.JSON(), nullable=False, server_default="[]")
        )
        batch.create_foreign_key("fk_point_game_id", "game", ["game_id"], ["id"])
        batch.create_index("ix_point_game_id", ["game_id"])

def downgrade():
    with op.batch_alter_table("point") as batch:
        batch.drop_index("ix_point_game_id")
        batch.drop_constraint("fk_point_game_id", type_="foreignkey")
        batch.drop_column("rally_types")
        batch.drop_column("receive_type")
        batch.drop_column("serve_type")
        batch.drop_column("game_id")
    op.drop_index("ix_game_match_id", table_name="game")
    op.drop_table("game")
