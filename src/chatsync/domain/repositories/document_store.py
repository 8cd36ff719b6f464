"""Document store protocol."""

from collections.abc import AsyncIterator, Mapping, Sequence
from typing import Any, Protocol

from chatsync.domain.entities import DocumentChange, FeedQuery


class ServerTimestamp:
    """Sentinel asking the store to stamp the server time on write."""

    _instance: "ServerTimestamp | None" = None

    def __new__(cls) -> "ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


class DocumentStore(Protocol):
    """ドキュメントストア（1コレクション）の抽象インターフェース

    リモートの結果整合なストアを抽象化する。全メソッドはリモートへの
    往復を伴い、任意の遅延・順序入れ替えが起こりうる。
    """

    def subscribe(self, query: FeedQuery) -> AsyncIterator[DocumentChange]:
        """変更フィードを購読する

        Args:
            query: 購読クエリ（並び順・ウィンドウサイズ）

        Returns:
            DocumentChange の非同期イテレータ（at-least-once、順序保証なし）
        """
        ...

    async def get(self, document_id: str) -> dict[str, Any] | None:
        """最新のドキュメントを取得する

        Args:
            document_id: ドキュメント ID

        Returns:
            ドキュメントのフィールド（存在しない場合は None）
        """
        ...

    async def find(self, where: Mapping[str, Any]) -> list[tuple[str, dict[str, Any]]]:
        """フィールドの等値条件でドキュメントを検索する

        Args:
            where: フィールド名 -> 値

        Returns:
            (ドキュメント ID, フィールド) のリスト
        """
        ...

    async def add(self, document: Mapping[str, Any]) -> str:
        """ドキュメントを追加する

        Args:
            document: フィールド（SERVER_TIMESTAMP を含んでもよい）

        Returns:
            ストアが割り当てたドキュメント ID
        """
        ...

    async def set(self, document_id: str, document: Mapping[str, Any]) -> None:
        """ID を指定してドキュメントを作成または置換する

        Args:
            document_id: ドキュメント ID
            document: フィールド
        """
        ...

    async def update(self, document_id: str, fields: Mapping[str, Any]) -> None:
        """ドキュメントの一部フィールドを更新する

        Args:
            document_id: ドキュメント ID
            fields: 更新するフィールド

        Raises:
            DocumentNotFoundError: ドキュメントが存在しない
        """
        ...

    async def delete(self, document_id: str) -> None:
        """ドキュメントを削除する（存在しなくてもエラーにしない）

        Args:
            document_id: ドキュメント ID
        """
        ...

    async def batch_delete(self, document_ids: Sequence[str]) -> None:
        """複数ドキュメントをアトミックに削除する

        Args:
            document_ids: 削除するドキュメント ID のリスト
        """
        ...
